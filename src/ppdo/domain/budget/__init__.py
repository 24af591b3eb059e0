"""Budget items, projects and project breakdowns."""
