from setuptools import setup, find_namespace_packages

setup(
    name="swarmstack",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["swarmstack", "swarmstack.*"]),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "psutil>=5.9",
        "tenacity>=8.0",
        "python-dotenv>=1.0",
        "jinja2>=3.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
        "dev": ["black>=23.0"],
    },
    entry_points={
        "console_scripts": [
            "swarmstack=swarmstack.CLI.main:main",
        ],
    },
)
