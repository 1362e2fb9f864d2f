from .ascii import print_circuit, render_circuit  # noqa: F401
