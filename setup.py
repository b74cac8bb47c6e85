"""
Setup configuration for SuperRes
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="superres",
    version="1.0.0",
    description="On-device image super-resolution with model readiness orchestration",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Image Processing",
    ],
    python_requires=">=3.10",
    install_requires=[
        "opencv-python>=4.10.0",
        "numpy>=2.1.3",
        "Pillow>=11.0.0",
        "python-dotenv>=1.0.1",
        "requests>=2.32.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.3",
            "pytest-asyncio>=0.24.0",
            "pytest-cov>=6.0.0",
            "black>=24.10.0",
            "flake8>=7.1.1",
            "mypy>=1.13.0",
        ],
        "ml": [
            "torch>=2.5.1",
            "torchvision>=0.20.1",
            "basicsr>=1.4.2",
            "realesrgan>=0.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "superres=superres.cli:main",
        ],
    },
)
