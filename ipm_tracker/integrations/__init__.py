"""Google Sheets / Calendar integrations and the sheet parsers they feed."""
