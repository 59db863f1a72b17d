"""Setup script for the stationwatch package."""

from setuptools import find_packages, setup

setup(
    name="stationwatch",
    version="0.1.0",
    description="Weather station telemetry monitoring and dashboard",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pymysql",
        "pyyaml",
        "python-dotenv",
        "paho-mqtt>=2.0.0",
        "rich",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "stationwatch-display=stationwatch.display:main",
            "stationwatch-uplink-logger=stationwatch.uplink_logger:main",
        ],
    },
)
