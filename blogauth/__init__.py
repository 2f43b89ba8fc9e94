"""Email/password authentication service with a small blogging data model."""
