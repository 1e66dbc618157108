"""Settings package for the Village Machaan booking service.

`base.py` holds the configuration shared by every environment. `dev.py`,
`prod.py` and `test.py` extend it with environment specific overrides.
"""
