"""
Plant Dashboard — CAPEX and instrument healthiness analytics backend

Turns loosely-structured Excel exports into typed row frames and derives
the KPIs, group tables and health scores the dashboards render.

To load an upload:
    Call loaders.load_capex_register(source) or
    loaders.load_instrument_workbook(source). Both return an
    IngestionResult (rows, warnings, errors) and never raise on bad data.

To connect to Streamlit/Dash:
    Call dashboard.get_capex_overview(rows, filters) or
    dashboard.get_instrument_overview(rows, filters) to get plain dicts of
    DataFrames for cards, charts and tables.

To accept a new header spelling:
    Add it to the field's tuple in config.CAPEX_ALIASES or
    config.INSTRUMENT_ALIASES.
"""
