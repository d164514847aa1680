from setuptools import setup, find_packages

setup(
    name="numere-analysis",
    version="0.1.0",
    description="Numerical analysis engine: roots, extrema, integrals and Taylor series of expressions and data",
    author="adamfilli",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "sympy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.10",
)
