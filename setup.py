"""Setup configuration for the NailongWatch Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="nailongwatch",
    version="0.1.0",
    description="A Discord bot that detects nailong images with an ONNX model and moderates them",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.5",
        "numpy>=1.26",
        "onnxruntime>=1.17",
        "Pillow>=10.1",
        "pillow-heif>=0.14",
        "requests>=2.31",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "nailongwatch=nailongwatch.main:main",
        ],
    },
)
