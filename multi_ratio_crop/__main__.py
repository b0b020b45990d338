from multi_ratio_crop.app import main

main()
