"""
Weld production dashboard: welder performance and quality analytics.

Analytics backend turning the workshop's weld operations sheet and its
quality (defect) sheet into dashboard-ready metrics.

To swap spreadsheet inputs for a database feed:
    Return the same string rows and headers from a new reader next to
    loaders.read_table(), then pass them to session.snapshot_from_tables().
    The normalised frame columns remain unchanged.

To connect to Streamlit/Dash:
    Hold one session.DashboardSession per user and call the functions in
    dashboard (get_overview, get_welder_ranking, ...) to get plain dicts and
    DataFrames for cards, Plotly charts and tables.

To add a header spelling:
    Append it to the matching *_ALIASES list in config. Earlier entries
    win when a row has several of them populated.
"""
