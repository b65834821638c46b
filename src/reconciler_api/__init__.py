"""HTTP surface for the payment webhook reconciler."""
