# setup.py
from setuptools import setup, find_packages

setup(
    name="fintrack",
    version="0.1.0",
    description="A personal finance tracker for INR income and expenses with dashboards and reports",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/fintrack",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "pandas>=1.1",
        "python-dotenv>=0.19",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fintrack=finance_tracker.cli:main",
            "fintrack-web=finance_tracker.web:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
