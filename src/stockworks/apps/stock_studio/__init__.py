"""Stock Studio: prompt generation, batch image generation and stock metadata."""
