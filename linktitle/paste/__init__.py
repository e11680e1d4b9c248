"""URL-to-titled-link conversion engine and paste pipeline."""
