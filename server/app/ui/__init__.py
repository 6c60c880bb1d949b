"""Server-rendered HTML pages for the studio."""
