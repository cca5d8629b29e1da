"""
Allow running the SBOM manager with ``python -m sbom_manager``.
"""

from .cli import main

if __name__ == "__main__":
    main()
