"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "NeuralGraph"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"

    # Engine defaults used when a request leaves them out
    default_activation: str = "relu"
    default_cost: str = "mse"
    learning_rate: float = 0.01
    epochs: int = 30
    max_epochs: int = 10000
    # Worker threads for background training; a paused run holds one
    max_training_runs: int = 4
    sample_count: int = 128
    noise_variance: float = 0.3

    # False keeps the historical behaviour of evaluating the activation
    # derivative at the node's activated value.
    exact_activation_derivative: bool = False
    gradient_clip: float | None = None

    model_config = {"env_prefix": "NEURALGRAPH_"}


settings = Settings()
