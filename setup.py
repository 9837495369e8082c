"""Setup configuration for Groupwarden."""

from setuptools import setup, find_packages

setup(
    name="groupwarden",
    version="0.1.0",
    description="Content moderation and new member verification for group chats",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.12",
    install_requires=[
        "aiosqlite",
        "openai",
        "Pillow>=10.1",
        "pillow-heif",
        "PyYAML",
        "python-dotenv",
        "prompt_toolkit",
        "jsonschema",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "groupwarden=groupwarden.main:main",
        ],
    },
)
