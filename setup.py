from setuptools import setup
from pathlib import Path

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="humantyper",
    version="0.3.0",
    description="Human-like typing and send automation for foreign UI trees",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=[
        "humantyper",
        "humantyper.keyboard",
        "humantyper.send",
        "humantyper.session",
        "humantyper.tree",
    ],
    install_requires=[
        "zendriver",
        "Pillow",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
)
