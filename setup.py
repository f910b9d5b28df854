from setuptools import setup, find_packages

setup(
    name="xhgrid",
    version="0.1.0",
    description="Read and validate SCHISM hgrid meshes into NumPy/xarray objects.",
    packages=find_packages(include=["xhgrid", "xhgrid.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "xarray",
        "pyproj",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "xhgrid-info=xhgrid.cli.hgrid_info:main",
        ],
    },
    python_requires=">=3.11",
)
