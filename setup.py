from setuptools import setup


setup(
    name="limitup-pager",
    version="0.1.0",
    description="Normalise limit-up spreadsheets and split them into category-priority pages",
    packages=["limitup_pager"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "fastapi",
        "python-multipart",
        "uvicorn",
        "streamlit",
        "requests",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "limitup-pager=limitup_pager.cli:main",
            "limitup-pager-api=limitup_pager.api:main",
        ]
    },
)
