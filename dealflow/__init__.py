"""dealflow: transaction workflow and notification engine for real-estate deals."""
