# ssoe/version.py
"""
SSOE Toolbox version information.

Centralizes the version string exposed as ``ssoe.__version__`` together with
package metadata and the minimum versions of the scientific stack. The toolbox
follows semantic versioning (MAJOR.MINOR.PATCH).
"""

from typing import Any, Dict

# Version components
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "SSOE Toolbox"
__description__ = "Single-source-of-error state space models for forecasting"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.9"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
    "statsmodels": ">=0.14.0",
}

VERSION_HISTORY = [
    {
        "version": "1.0.0",
        "release_date": "2026-10-19",
        "changes": [
            "General univariate model with arbitrary orders and lags",
            "Multi-step cost functions and two-phase bounded optimization",
            "Occurrence models and automatic selection for intermittent series",
            "Parametric, semiparametric and nonparametric prediction intervals",
        ]
    },
]


def get_version_info() -> Dict[str, Any]:
    """
    Detailed version information about the toolbox.

    Returns:
        Dict containing the version string, its components, the release date,
        recent changes and the dependency requirements.
    """
    current_version = VERSION_HISTORY[0]
    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "release_date": current_version["release_date"],
        "changes": current_version["changes"],
        "python_requires": __python_requires__,
        "dependencies": __dependencies__,
        "license": __license__,
    }
