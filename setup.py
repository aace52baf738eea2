from setuptools import setup, find_packages

install_requires = [
    # --- UI & REACTIVE ---
    # Pulls in Flet as well
    "FletXr>=0.1.4",

    # --- CONFIG & MODELS ---
    "pydantic>=2.0.0",
    "python-dotenv>=1.0.0",
    "pyyaml>=6.0.0",
]

extras_require = {
    # --- TESTS ---
    "test": [
        "pytest",
        "pytest-asyncio==1.3.0",
    ],
}

setup(
    name="elements-studio",
    version="0.3.0",
    description="Elements Studio | editor navigation and reactive state",
    packages=find_packages(include=["studio", "studio.*"]),
    include_package_data=True,
    package_data={"studio.shared.config": ["settings/*.yaml"]},
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.11",
)
