"""Setup script for openweather_provider package."""

from setuptools import setup, find_packages

setup(
    name="signalk-openweather-provider",
    version="0.2.0",
    description="OpenWeather provider with position-aware caching and vessel position polling",
    license="Apache-2.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "pytz>=2023.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "openweather-provider=openweather_provider.main:main",
        ],
    },
)
