"""
propscale 项目构建配置

集群比例副本伸缩引擎及其端到端校验场景
"""

from setuptools import setup, find_packages
import os

# 读取 README 文件
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# 读取版本信息
def read_version():
    with open("propscale/__init__.py", "r", encoding="utf-8") as fh:
        for line in fh:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"

# 读取依赖文件
def read_requirements(path="requirements.txt"):
    requirements = []
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]
    return requirements

setup(
    name="propscale-core",
    version=read_version(),
    description="集群比例副本伸缩 - propscale",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["propscale", "propscale.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Clustering",
        "Topic :: System :: Systems Administration",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": read_requirements("requirements-dev.txt"),
        "test": read_requirements("requirements-dev.txt"),
    },
    entry_points={
        "console_scripts": [
            "propscale=propscale.cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "propscale": [
            "config/*.yaml",
        ],
    },
    zip_safe=False,
    keywords=[
        "kubernetes",
        "autoscaling",
        "cluster-proportional",
        "dns",
        "replicas",
    ],
)
