"""Static catalogs used by the assessment steps."""
