"""Query building blocks shared by the listing and detail statements."""
