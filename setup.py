from setuptools import setup, find_packages
from pathlib import Path

# Read requirements.txt
requirements = [
    line.strip()
    for line in Path("requirements.txt").read_text().splitlines()
    if line.strip() and not line.startswith("#")
]

setup(
    name="rtrbatch",
    version="0.0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest",
            "fastapi",
            "uvicorn",
        ],
    },
    entry_points={
        'console_scripts': [
            'rtrbatch=rtrbatch.cli:main',
        ],
    },
    zip_safe=False,
    python_requires=">=3.8",
)
