# Author: Bradley R. Kinnard
# config package - parameter schema and shipped defaults
