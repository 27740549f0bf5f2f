"""HTTP clients for Trello and Google Calendar."""
