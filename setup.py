import os
import sys

from setuptools import setup


if sys.argv[-1] == "publish":
    os.system("python setup.py sdist upload")
    sys.exit()


setup(
    name="NUTSSampler",
    version="1.0.0",
    packages=["NUTSSampler", "NUTSSampler.backends"],
    package_dir={"NUTSSampler": "NUTSSampler"},
    license="GPLv3",
    zip_safe=False,
    description="No-U-Turn Hamiltonian Monte Carlo sampler written in Python",
    long_description=open("README.md").read() + "\n\n" + "---------\n\n" + open("HISTORY.md").read(),
    long_description_content_type="text/markdown",
    package_data={"": ["README.md", "HISTORY.md"]},
    python_requires=">=3.8",
    install_requires=["numpy", "scipy"],
    extras_require={"test": ["pytest"]},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: GNU General Public License (GPL)",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ],
)
