"""
Setup script for the Point Cloud Triangulation package.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "Moving least squares smoothing and convex hull triangulation of point clouds"


# Core requirements (always installed)
install_requires = [
    'numpy>=1.19.0',
    'scipy>=1.10.0',
    'trimesh>=3.9.0'
]

# Optional dependencies for different use cases
extras_require = {
    'open3d': [
        'open3d>=0.15.0'
    ],
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0'
    ],
    'all': [
        # Include all optional dependencies
        'open3d>=0.15.0',
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0'
    ]
}

setup(
    name="point-cloud-triangulation",
    version="1.0.0",
    description="Moving least squares smoothing and convex hull triangulation of point clouds",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['PointCloudTriangulation', 'PointCloudTriangulation.*']),
    py_modules=['run_triangulation'],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Visualization",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        'console_scripts': [
            'pct-triangulate=run_triangulation:main',
        ],
    },
    keywords=[
        "point cloud",
        "moving least squares",
        "surface reconstruction",
        "convex hull",
        "mesh"
    ]
)
