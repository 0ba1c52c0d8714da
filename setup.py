from setuptools import setup, find_packages


if __name__ == "__main__":
    setup(
        name="dsge_regimes",
        version="0.1.0",
        description="Regime partitions, regime system matrices and Kalman filter output for ZLB estimation",
        platforms="linux",
        packages=find_packages(),
        python_requires=">=3.9",
        install_requires=[
            "numpy",
            "pandas",
            "scipy",
            "pyyaml",
            "cerberus",
            "numba",
        ],
        extras_require={
            "test": ["pytest"],
        },
        include_package_data=True,
        package_data={
            "dsge_regimes": [
                "schema/*",
            ]
        },
    )
