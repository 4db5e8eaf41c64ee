from setuptools import setup, find_packages

setup(
    name="hoa-billing-import",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "SQLAlchemy[asyncio]>=2.0.0",
        "asyncpg>=0.29.0",
    ],
    extras_require={
        "local": [
            "boto3>=1.26.0",
            "botocore>=1.29.0",
            "aiosqlite>=0.19.0",
        ],
        "dev": [
            "boto3>=1.26.0",
            "botocore>=1.29.0",
            "aiosqlite>=0.19.0",
            "mypy>=1.0.0",
            "types-boto3>=1.0.0",
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
            "moto>=5.0.0",
            "black>=23.0.0",
            "isort>=5.0.0",
            "flake8>=6.0.0"
        ]
    }
)
