from setuptools import setup, find_packages

setup(
    name="request-validation-lib",
    version="0.1.0",
    description="Rule-based request validation and sanitization with route validators",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'request_validation': ['validation-config.yaml'],
    },
    include_package_data=True,
    install_requires=[
        'pyyaml>=6.0',
        'jsonschema>=4.17.0',
        'requests>=2.28.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'request-validation-rpc=request_validation.jsonrpc_server:main',
        ],
    },
    python_requires='>=3.9',
)
