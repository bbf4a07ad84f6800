from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="chemevln",
    version="0.1.0",
    description="Stiff chemical-kinetics evolution with element, grain and charge conservation",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
    ],
    # The numba kernels are picked up automatically when numba is importable.
    extras_require={
        "numba": ["numba"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "chemevln-demo=chemevln.driver:main",
        ],
    },
)
