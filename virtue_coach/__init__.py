"""Stage 2 (Building) writing-prompt service for the virtue journal."""
