"""Root conftest; puts the repository root on sys.path so ``src`` imports resolve."""
