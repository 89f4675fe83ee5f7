"""Setup configuration for gitstats"""

from setuptools import setup, find_packages

setup(
    name="gitstats-analytics",
    version="0.1.0",
    description=(
        "Behavioral and collaboration analytics for Git commits and Bitbucket "
        "pull requests: code-move detection, commit sentiment, burnout risk "
        "and team health scores."
    ),
    author="GitStats Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "gitstats=gitstats.main:main",
        ],
    },
)
