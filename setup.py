from setuptools import setup, find_packages


def parse_requirements():
    with open('requirements.txt') as file:
        requirements = [line.strip() for line in file.readlines() if line.strip()]
    return requirements


if __name__ == '__main__':
    setup(
        name='contentresolver',
        version='1.0',
        package_dir={'': '.'},
        packages=find_packages('.', exclude=['tests', 'tests.*']),
        install_requires=parse_requirements(),
        extras_require={'test': ['pytest', 'pytest-asyncio']},
        python_requires='>=3.9',
        entry_points={'console_scripts': ['contentresolver=contentresolver.cli:main']}
    )
