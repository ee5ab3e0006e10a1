from setuptools import setup, find_packages

setup(
    name="operable",
    version="0.1.0",
    description="Operable: GCP and Kubernetes incident-response tools served over MCP",
    author="Operable",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["operable"],
    install_requires=[
        "requests>=2.31.0",
        "google-auth>=2.23.0",
        "mcp>=1.2.0,<2",
        "anyio>=4.1",
        "starlette>=0.27",
        "uvicorn>=0.23",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "operable=operable:main",
        ],
    },
)
