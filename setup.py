"""Install the OAuth2 authorization code grant package."""

from setuptools import setup, find_packages

setup(
    name='authgrant',
    version='0.1.0',
    description='OAuth2 authorization code grant engine with Flask endpoints',
    packages=find_packages(include=['authgrant', 'authgrant.*'],
                           exclude=['*test*']),
    python_requires='>=3.9',
    install_requires=[
        "authlib",
        "click",
        "flask[async]>=2.0",
        "python-json-logger",
        "pytz",
        "sqlalchemy>=1.4",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "authgrant=authgrant.cli:cli",
        ],
    },
    zip_safe=False
)
