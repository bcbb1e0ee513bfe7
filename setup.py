from setuptools import setup, find_packages


setup(
    name="anvbot",
    version="0.1.0",
    description="Minimal WhatsApp bot: QR pairing, event logging and text replies",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "neonize>=0.3.10",
        "protobuf>=4.25",
        "segno>=1.6",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "typer>=0.12",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "anvbot=anvbot.cli:app",
        ]
    },
    python_requires=">=3.11",
)
