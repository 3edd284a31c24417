"""Setup configuration for caselink package."""

from setuptools import find_packages, setup

setup(
    name="caselink",
    version="0.1.0",
    description="Forensic case linkage service with DNA match graph assembly",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "Flask>=3.1.0",
        "flask-cors>=5.0.0",
        "Werkzeug>=3.1.3",
        "gunicorn>=23.0.0",
        "typer>=0.15.1",
        "click>=8.1.8",
        "rich>=13.9.4",
        "requests>=2.32.3",
        "httpx>=0.28.1",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "caselink=caselink.main:app",
        ],
    },
)
