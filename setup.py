from setuptools import setup, find_packages

setup(
    name="optrip",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"optrip": ["templates/*.html"]},
    install_requires=[
        "fastapi",
        "uvicorn",
        "python-dotenv",
        "pydantic",
        "pydantic-settings",
        "googlemaps",
        "polyline",
        "aiohttp",
        "jinja2",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    python_requires=">=3.10",
)
