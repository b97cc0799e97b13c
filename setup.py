# DEPENDENCIES
from setuptools import setup
from setuptools import find_packages


# Read the long description from README.md if it exists

readme_path = "README.md"

try:
    with open(readme_path, "r", encoding="utf-8") as fh:
        long_description = fh.read()

except FileNotFoundError:
    long_description = "Statute version comparison and legislative conflict detection"

setup(name                          = "ai-statute-analyzer",
      version                       = "1.0.0",
      description                   = "Clause-level comparison of statute versions and retrieval-based detection of conflicts with existing legislation.",
      long_description              = long_description,
      long_description_content_type = "text/markdown",
      packages                      = find_packages(exclude = ["tests", "tests.*"]),
      py_modules                    = ["app"],
      classifiers                   = ["Development Status :: 4 - Beta",
                                       "Intended Audience :: Legal Industry",
                                       "Operating System :: OS Independent",
                                       "Programming Language :: Python :: 3",
                                       "Programming Language :: Python :: 3.10",
                                       "Programming Language :: Python :: 3.11",
                                      ],
      python_requires               = ">=3.10",
      install_requires              = ["fastapi>=0.104.1",
                                       "uvicorn[standard]>=0.24.0",
                                       "pydantic>=2.5.0",
                                       "pydantic-settings>=2.1.0",
                                       "numpy>=1.24.0",
                                       "torch>=2.1.0",
                                       "sentence-transformers>=2.2.2",
                                       "requests>=2.31.0",
                                       "openai>=1.0.0",
                                       "rapidfuzz>=3.0.0",
                                      ],
      extras_require                = {"dev"       : ["black>=23.10.0", "isort>=5.12.0", "flake8>=6.0.0", "pytest>=7.4.0", "httpx>=0.25.0"],
                                       "anthropic" : ["anthropic>=0.5.0"], # Optional Anthropic support
                                      },
      entry_points                  = {"console_scripts": ["ai-statute-analyzer=app:main"]},
      include_package_data          = True,
     )
