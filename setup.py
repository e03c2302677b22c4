from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="newsroom",
    version="0.1.0",
    author="MT Kenya News",
    author_email="info@mtkenyanews.com",
    description="JSON API for a regional news site: articles, subscribers, comments, polls and an admin API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/mtkenyanews/newsroom",
    packages=find_packages(include=["newsroom", "newsroom.*"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: Flask",
    ],
    python_requires=">=3.9",
    install_requires=[
        "Flask>=3.0.0",
        "Flask-SQLAlchemy>=3.0.0",
        "SQLAlchemy>=2.0.0",
        "Flask-CORS>=4.0.0",
        "python-dotenv>=1.0.0",
        "requests>=2.28.0",
        "python-jose[cryptography]>=3.3.0",
        "boto3>=1.26.0",
    ],
    extras_require={
        "postgres": [
            "psycopg2-binary>=2.9",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-flask>=1.2",
            "black>=22.0",
            "flake8>=5.0",
        ],
    },
    zip_safe=False,
)
