"""Service integrations: datastore, tokens, verification, mail and OAuth."""
