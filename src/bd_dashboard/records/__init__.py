"""Record shaping -- cell normalization, loose date parsing, label maps and schemas."""
