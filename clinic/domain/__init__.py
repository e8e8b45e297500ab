"""Domain packages; each has router / service / repository / schemas"""
