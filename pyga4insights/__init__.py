"""
PyGA4Insights pulls Google Analytics 4 reports with a service account key and posts a daily digest of them
to a Telegram chat.

To start, you must first create a service account and save the JSON key file locally:
https://developers.google.com/analytics/devguides/reporting/data/v1/quickstart-client-libraries
Also, give the service account email address "Viewer" access to the GA4 property you want to read.
Now you can use the report client.

Follow the implementation example below:

```
import asyncio
from pyga4insights.client import InsightsClient

insights_client = InsightsClient.build(key_file_path='<path-to-your-key-file>')
ga4 = insights_client.report_client(property_id='<ga4-property-id>')
result = asyncio.run(ga4.get_users_by_country())
print(result.to_dict())
```
"""

__version__ = "0.1.0"
__author__ = 'Joshua Prettyman'
__credits__ = 'Blink SEO'

import logging

pgi_logger = logging.getLogger(__name__)


from .errors import ErrorKind, Ga4InsightsError, CredentialLoadError, TokenIssuanceError, ReportRequestError
from .credentials import CredentialStore, ServiceAccountCredential, FileCredential, InlineCredential
from .auth import TokenIssuer
from .reports import DateRange, DimensionFilter, OrderBy, ReportQuery, ReportKind, ReportRow, ReportResult
from .ga4_wrapper import Ga4ReportClient
