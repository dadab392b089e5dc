class CostGenerator:
	"""Estimate API cost for the vision models used by the detector.

	This class provides a simple interface to compute estimated cost
	given the number of input tokens, output tokens, and a model name.

	Supported models and their default prices (USD per 1,000 tokens):
	- gpt-4.1-mini: 0.0004 (input), 0.0016 (output)
	- gpt-4.1: 0.002 (input), 0.008 (output)
	- gpt-4o-mini: 0.00015 (input), 0.0006 (output)
	- gpt-5-mini: 0.00025 (input), 0.002 (output)

	The values above are defaults and should be kept up-to-date by
	the caller if pricing changes.
	"""

	DEFAULT_PRICING = {
		"gpt-4.1-mini": {"input_per_1k": 0.0004, "output_per_1k": 0.0016},
		"gpt-4.1": {"input_per_1k": 0.002, "output_per_1k": 0.008},
		"gpt-4o-mini": {"input_per_1k": 0.00015, "output_per_1k": 0.0006},
		"gpt-5-mini": {"input_per_1k": 0.00025, "output_per_1k": 0.002},
	}

	def __init__(self, pricing: dict | None = None):
		"""Create a CostGenerator.

		Args:
			pricing: Optional mapping of model -> {"input_per_1k": float, "output_per_1k": float}.
				When omitted, `DEFAULT_PRICING` will be used.
		"""
		self.pricing = pricing or dict(self.DEFAULT_PRICING)

	def estimate(self, input_tokens: int, output_tokens: int, model: str) -> float:
		"""Estimate the USD cost of a single detection call.

		Raises:
			ValueError: If tokens are negative or model is not supported.
		"""
		if input_tokens < 0 or output_tokens < 0:
			raise ValueError("Token counts must be non-negative integers.")

		model = model.lower()
		if model not in self.pricing:
			raise ValueError(f"Unsupported model '{model}'. Supported: {', '.join(self.pricing.keys())}")

		rates = self.pricing[model]
		input_cost = (input_tokens / 1000.0) * rates["input_per_1k"]
		output_cost = (output_tokens / 1000.0) * rates["output_per_1k"]
		return round(input_cost + output_cost, 8)
