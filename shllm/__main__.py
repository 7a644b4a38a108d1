from shllm.cli import main

# Allows running:  python -m shllm
if __name__ == "__main__":
    main()
