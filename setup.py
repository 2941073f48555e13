from setuptools import setup, find_packages

setup(
    name="photo_captions",
    version="1.0.0",
    description="Batch captioning and EXIF extraction for remote images",
    author="Nerveband",
    author_email="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "google-generativeai>=0.3.0",
        "Pillow>=10.0.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "absl-py>=2.0.0",
        "click>=8.0.0",
        "httpx>=0.24.0",
        "typing-extensions>=4.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "photo-captions=photo_captions.cli.main:cli",
        ],
    },
    python_requires=">=3.9",
)
