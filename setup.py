from setuptools import setup, find_packages  # type: ignore

setup(
    name='postproof',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'httpx',
        'loguru',
        'solders',
        'solana<0.40',
        'pycryptodome',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Proof-of-post campaign client: resolves Bluesky posts and submits on-ledger verification requests',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.11',
    entry_points={
        'console_scripts': [
            'postproof=postproof.cli:main',
        ],
    },
)
