from setuptools import setup, find_packages


with open("src/glycoloc/version.py") as version_file:
    version = None
    for line in version_file.readlines():
        if "version = " in line:
            version = line.split(" = ")[1].replace("\"", "").strip()
            print("Version is: %r" % (version,))
            break
    else:
        print("Cannot determine version")


requirements = []
with open("requirements.txt") as requirements_file:
    requirements.extend(
        line.strip() for line in requirements_file.readlines() if line.strip())

try:
    with open("README.md") as readme_file:
        long_description = readme_file.read()
except Exception as e:
    print(e)
    long_description = ""


def run_setup():

    setup(
        name="glycoloc",
        version=version,
        packages=find_packages(where="src"),
        package_dir={"": "src"},
        include_package_data=True,
        description="Site-specific glycan localization for glycopeptide tandem mass spectra",
        long_description=long_description,
        long_description_content_type='text/markdown',
        install_requires=requirements,
        extras_require={
            "test": ["pytest"],
        },
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Science/Research",
            "License :: OSI Approved :: Apache Software License",
            "Topic :: Scientific/Engineering :: Bio-Informatics",
        ],
        zip_safe=False,
        python_requires=">3.8",
    )


run_setup()
