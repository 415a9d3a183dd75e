"""Infrastructure adapters: storage backends and the product catalog."""
