import setuptools
from setuptools import find_packages

with open("readme.md", "r") as fh:
    long_description = fh.read()


vars2find = ["__author__", "__version__", "__url__"]
vars2readme = {}
with open("./artsite/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace(" ", "").replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=", 1)[1]

core_deps = [
    "tenacity",
    "aioboto3",
    "botocore",
    "httpx",
    "pydantic>=2.0",
    "pydantic-settings>=2.0",
    "sqlalchemy[asyncio]>=2.0",
    "aiosqlite",
]

api_deps = [
    "fastapi",
    "uvicorn",
    "python-multipart",
    "python-jose[cryptography]",
]

setuptools.setup(
    name="artsite",
    url=vars2readme["__url__"],
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Component-based backup and restore for an art-portfolio backend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=core_deps + api_deps,
    extras_require={
        "postgres": ["asyncpg"],
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
        "all": [
            "asyncpg",
            "pytest",
            "pytest-asyncio",
        ],
    },
)
