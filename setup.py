from setuptools import setup

# python setup.py check
# python setup.py sdist
# python setup.py bdist_wheel --universal
# twine upload dist/*

_desc = """PyGA4Insights pulls Google Analytics 4 reports with a service account key and posts a daily digest
of them to a Telegram chat."""

setup(
    name='pyga4insights',
    version='0.1.0',
    description=_desc,
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    url='https://github.com/Blink-SEO/pyga4insights',
    author='Joshua Prettyman',
    author_email='joshua@blinkseo.co.uk',
    license='MIT',
    packages=['pyga4insights', 'pyga4insights.utils'],
    python_requires='>=3.10',
    install_requires=[
        'pandas',
        'google-auth>=2.20.0',
        'google-analytics-data>=0.16.1',
        'httpx[socks]>=0.26.0',
        'pydantic>=2.0',
        'pydantic-settings>=2.0',
        'python-dotenv',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'cryptography',
        ]
    },
    entry_points={
        'console_scripts': ['pyga4insights=pyga4insights.__main__:main'],
    },
    classifiers=[
        "Intended Audience :: Developers",
        'Development Status :: 1 - Planning',
        'License :: OSI Approved :: MIT License',
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
