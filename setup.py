"""Setup configuration for LLM Market Assistant package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="llm-market-assistant",
    version="0.1.0",
    author="LLM Market Assistant Contributors",
    description="Crypto market analysis chat assistant backed by an OpenAI-compatible LLM",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["llm_market_assistant", "llm_market_assistant.*"]),
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.32.3",
        "pydantic>=2.7",
        "tenacity>=8.2",
        "fastapi>=0.110",
        "slowapi>=0.1.9",
        "uvicorn>=0.29",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.3",
            "pytest-cov>=5.0.0",
            "httpx>=0.27",
            "mypy>=1.11.2",
            "black>=24.8.0",
            "ruff>=0.6.9",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Office/Business :: Financial :: Investment",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
    ],
    entry_points={
        "console_scripts": [
            "llm-market-chat=llm_market_assistant.cli.chat_cli:main",
        ],
    },
)
