"""
models/ - Sales Dashboard Engine data shapes

Modules:
    enumerations.py  - Roles, scopes, tiers, flags, operators, views
    record.py        - Immutable CRM Record wrapper and the ABSENT sentinel
    config.py        - AppConfig and its admin-editable sections
    defaults.py      - Factory-default AppConfig
    dashboard.py     - Viewer, ListQuery, results, hierarchy snapshots
"""
