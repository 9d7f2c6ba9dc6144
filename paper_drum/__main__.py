from paper_drum.main import main

main()
