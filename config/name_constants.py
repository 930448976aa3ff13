# koppla/config/name_constants.py

# Common-name reference sets

# A match on these tokens lowers trust in an identity/sanctions hit: the name
# alone is shared by too many people to prove it is the same person.
# All entries are lowercase; Arabic names are transliterated.

COMMON_FIRST_NAMES = {
    # ENGLISH
    "en": {
        "james", "john", "robert", "michael", "david", "william", "richard",
        "joseph", "thomas", "charles", "christopher", "daniel", "matthew",
        "anthony", "mark", "donald", "steven", "paul", "andrew", "joshua",
        "mary", "patricia", "jennifer", "linda", "barbara", "elizabeth",
        "susan", "jessica", "sarah", "karen", "nancy", "lisa", "betty",
        "margaret", "sandra", "ashley", "dorothy", "kimberly", "emily", "donna",
        "peter", "george", "edward", "brian", "ronald", "timothy", "jason",
        "jeffrey", "ryan", "jacob", "gary", "nicholas", "eric", "jonathan",
        "stephen", "larry", "justin", "scott", "brandon", "benjamin",
        "samuel", "raymond", "gregory", "frank", "alexander", "patrick",
        "jack", "dennis", "jerry", "tyler", "aaron", "jose", "adam",
        "nathan", "henry", "douglas", "zachary", "kevin", "noah", "ethan",
    },

    # SWEDISH
    "sv": {
        "erik", "lars", "karl", "anders", "johan", "per", "nils", "lennart",
        "björn", "peter", "jan", "olof", "sven", "hans", "bengt", "bo",
        "ulf", "thomas", "göran", "mikael", "leif", "christer", "mats",
        "stefan", "magnus", "gunnar", "jonas", "mattias", "henrik", "fredrik",
        "anna", "maria", "karin", "margareta", "elisabeth", "eva", "kristina",
        "birgitta", "marie", "ingrid", "linnéa", "sofia", "elin", "sara",
        "emma", "kerstin", "lena", "marianne", "helena", "katarina", "annika",
        "jenny", "susanne", "monica", "johanna", "ulla", "carina", "malin",
        "andreas", "daniel", "alexander", "oscar", "william", "viktor",
        "gustaf", "axel", "carl", "david", "martin", "patrik", "tobias",
    },

    # ARABIC (TRANSLITERATED)
    "ar": {
        "mohammed", "muhammad", "mohamed", "mohammad", "ahmed", "ahmad",
        "ali", "hassan", "hasan", "hussein", "husain", "hussain",
        "omar", "umar", "khalid", "khaled", "ibrahim", "youssef", "yusuf",
        "yousef", "mustafa", "mostafa", "abdullah", "abdallah",
        "faisal", "faysal", "salman", "nasser", "nasir", "saeed", "said",
        "karim", "kareem", "tariq", "tarek", "walid", "waleed",
        "sami", "adel", "adil", "rashid", "rachid", "majid", "majed",
        "jamal", "gamal", "hamad", "hamid", "bilal", "zaid", "zayd",
        "fatima", "fatimah", "aisha", "aysha", "maryam", "mariam",
        "nour", "noor", "layla", "leila", "sara", "sarah", "huda",
        "amina", "aminah", "zainab", "zaynab", "khadija", "khadijah",
        "yasmin", "hana", "rania", "dina", "lina", "samira", "jamila",
    },
}

COMMON_LAST_NAMES = {
    # ENGLISH
    "en": {
        "smith", "johnson", "williams", "brown", "jones", "garcia", "miller",
        "davis", "rodriguez", "martinez", "hernandez", "lopez", "gonzalez",
        "wilson", "anderson", "thomas", "taylor", "moore", "jackson", "martin",
        "lee", "perez", "thompson", "white", "harris", "sanchez", "clark",
        "ramirez", "lewis", "robinson", "walker", "young", "allen", "king",
        "wright", "scott", "torres", "nguyen", "hill", "flores", "green",
        "adams", "nelson", "baker", "hall", "rivera", "campbell", "mitchell",
        "carter", "roberts", "gomez", "phillips", "evans", "turner", "diaz",
        "parker", "cruz", "edwards", "collins", "reyes", "stewart", "morris",
    },

    # SWEDISH
    "sv": {
        "andersson", "johansson", "karlsson", "nilsson", "eriksson", "larsson",
        "olsson", "persson", "svensson", "gustafsson", "pettersson", "jonsson",
        "jansson", "hansson", "bengtsson", "jönsson", "lindberg", "jakobsson",
        "magnusson", "lindström", "olofsson", "lindqvist", "lindgren", "berg",
        "axelsson", "bergström", "lundberg", "lind", "lundgren", "lundqvist",
        "mattsson", "berglund", "fredriksson", "sandberg", "henriksson", "forsberg",
        "sjöberg", "wallin", "engström", "danielsson", "håkansson", "eklund",
        "lundin", "gunnarsson", "holm", "björk", "bergman", "fransson",
        "samuelsson", "nordin", "nyström", "holmberg", "isaksson", "arvidsson",
    },

    # ARABIC (TRANSLITERATED)
    "ar": {
        "al-rashid", "al-mansour", "al-hassan", "al-sheikh", "al-qasim",
        "al-omari", "al-bakr", "al-din", "al-hashimi", "al-saadi",
        "al-mahmoud", "al-ibrahim", "al-ali", "al-ahmed", "al-khalid",
        "al-saud", "al-thani", "al-nahyan", "al-maktoum", "al-sabah",
        "al-khalifa", "al-sharif", "al-amin", "al-hadi", "al-nasser",
        "khan", "shah", "sheikh", "sharif", "hashim", "hashimi",
        "hassan", "hussein", "ahmed", "mahmoud", "ibrahim", "mustafa",
        "malik", "sultan", "amir", "rahim", "rahman", "hamid",
        "el-masri", "el-amin", "el-sayed", "el-din", "el-mahdi",
        "bin laden", "bin salman", "bin zayed", "bin rashid",
        "al-asad", "al-maliki", "al-abadi", "al-sistani",
    },
}
