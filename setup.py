# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="urdf-assembler",
    version="1.0.0",
    description="Assemble URDF/xacro robot descriptions from files, folders or hosted samples",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["urdf_assembler*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",
        "xacro",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'urdf-assembler=urdf_assembler.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
