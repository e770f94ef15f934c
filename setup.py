from setuptools import setup, find_packages

setup(
    name="route-budgets",
    version="0.1.0",
    description="Per-connection delay budgets for timing-driven FPGA routing",
    author="",
    author_email="",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "networkx>=3.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
        "dev": [
            "black>=23.0.0",
            "mypy>=1.5.0",
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
)
