# helperbars/core/__init__.py
