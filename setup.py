from setuptools import find_namespace_packages, setup

setup(
    name="reclaim",
    version="0.3.0",
    description="Storage intelligence for installed apps, leftovers, duplicates and bulky folders",
    python_requires=">=3.11",
    packages=find_namespace_packages(include=["reclaim", "reclaim.*"]),
    install_requires=[
        "result>=0.17",
        "rich>=13.7",
        "Send2Trash>=1.8",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "typing_extensions>=4.4",
        ],
    },
)
