from setuptools import setup, find_packages

setup(
    name="chatgraph",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2",
        "mirascope[openai,anthropic]>=1,<2",
        "openai",
        "anthropic",
        "tenacity",
        "httpx",
        "aiohttp",
        "aiosqlite",
        "pydantic-settings>=2",
        "sqlglot>=25",
        "fastapi",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatgraph=chatgraph.__main__:main",
        ],
    },
    python_requires=">=3.10",
    description="conversational agent backend built on a resumable workflow graph",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
