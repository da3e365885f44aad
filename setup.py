from setuptools import setup, find_packages


setup(
    name="ruleflow",
    version="0.1.0",
    description="Composable trading rules and adaptive stop-loss / stop-gain exit prices",
    author="Andrea Ferrante",
    author_email="nonicknamethankyou@gmail.com",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3 :: Only",
    ],
    keywords="trading, backtesting, rules, stop-loss, trailing-stop",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10, <4",
    install_requires=["pandas", "numpy", "polars", "tqdm"],
    extras_require={"test": ["pytest"]},
)
