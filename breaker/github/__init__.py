"""GitHub contribution-calendar fetching (GraphQL client, typed errors, date ranges)."""
