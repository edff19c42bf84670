"""Deployment and credential setup: keystores, deploys and deployment records."""
