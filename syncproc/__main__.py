from doctest import testmod
from importlib import import_module

MODULES = 'exc', 'bridge', 'settings', 'parse', 'lines', 'sink', 'process', 'pipe', 'util'

failures = 0
print('checking modules...')
for name in MODULES + ('',):
    mod = import_module(f'syncproc.{name}'.rstrip('.'))
    print(f'\t{mod.__name__}...')
    failures += testmod(mod).failed
print()

raise SystemExit(1 if failures else 0)
