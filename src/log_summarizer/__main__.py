from log_summarizer.cli import main

main()
