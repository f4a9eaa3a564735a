# setup.py

from setuptools import setup, find_packages

setup(
    name="openstack-metrics-collector",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "openstacksdk",
        "requests",
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'openstack-collector=openstack_collector.cli:main',
        ],
    },
    author="Your Name",
    author_email="your.email@example.com",
    description="OpenStack resource summary metrics collector",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    keywords="openstack metrics monitoring influxdb",
    python_requires=">=3.8",
)
